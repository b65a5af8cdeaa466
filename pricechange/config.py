import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Upstream subgraph
SUBGRAPH_URL = os.getenv("SUBGRAPH_URL", "https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v2")
BUNDLE_ID = os.getenv("BUNDLE_ID", "1")  # The bundle holding the ETH/USD reference price
SUBGRAPH_TIMEOUT = float(os.getenv("SUBGRAPH_TIMEOUT", 10))

# Price change defaults
DEFAULT_INTERVAL_SECONDS = int(os.getenv("DEFAULT_INTERVAL_SECONDS", 3600))
DEFAULT_TIMEFRAME = os.getenv("DEFAULT_TIMEFRAME", "MONTH")
MAX_DAILY_ENTRIES = int(os.getenv("MAX_DAILY_ENTRIES", 1000))  # Subgraph page limit for `first`
MAX_INTERVAL_BUCKETS = int(os.getenv("MAX_INTERVAL_BUCKETS", 50000))  # Upper bound on buckets per interval series
MAX_DURATION_SECONDS = int(os.getenv("MAX_DURATION_SECONDS", 100 * 365 * 86400))  # Longest accepted price change duration

# Logging
LOG_FILE = os.getenv("LOG_FILE", "price_change.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# API server
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", 8000))
