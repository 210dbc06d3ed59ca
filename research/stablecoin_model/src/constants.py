# Fixed point scale factors
PRICE_PRECISION = 100_000_000  # 1e8, normalized oracle price
PRICE_DECIMALS = 8
HF_PRECISION = 100_000_000  # 1e8, health factor 1.0
BPS_SCALE = 10_000  # Basis points (100% = 10000)
PERCENT_SCALE = 100

# Integer bounds
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1

# Health factor reported for a position with no debt
INFINITE_HEALTH_FACTOR = U128_MAX

# Token decimals
LAMPORTS_PER_SOL = 1_000_000_000
MINT_DECIMALS = 9

# Protocol defaults
MIN_HEALTH_FACTOR = HF_PRECISION  # 1.0
LIQUIDATION_THRESHOLD = 50  # 50% of collateral value counts toward solvency
LIQUIDATION_BONUS = 10  # 10% extra collateral to the liquidator

# Oracle defaults
FEED_ID = "ef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d"  # SOL/USD
MAXIMUM_AGE = 100  # seconds
MAX_CONFIDENCE_BPS = 200  # 2% of price

# Address namespaces
SEED_CONFIG_ACCOUNT = "config"
SEED_COLLATERAL_ACCOUNT = "collateral"
SEED_SOL_ACCOUNT = "sol"
SEED_MINT_ACCOUNT = "mint"
SEED_TOKEN_ACCOUNT = "token"
