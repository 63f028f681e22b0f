"""Static reference data for the market providers.

The price table is a last-resort fallback when CoinGecko is unreachable; the
id map links Coinlore ticker ids to CoinGecko coin ids for price history.
"""

REFERENCE_COINS: list[dict] = [
    {"id": "bitcoin", "symbol": "BTC", "name": "Bitcoin", "current_price": 115000.0},
    {"id": "ethereum", "symbol": "ETH", "name": "Ethereum", "current_price": 4100.0},
    {"id": "tether", "symbol": "USDT", "name": "Tether", "current_price": 1.0},
    {"id": "binancecoin", "symbol": "BNB", "name": "BNB", "current_price": 720.0},
    {"id": "solana", "symbol": "SOL", "name": "Solana", "current_price": 245.0},
    {"id": "usd-coin", "symbol": "USDC", "name": "USD Coin", "current_price": 1.0},
    {"id": "staked-ether", "symbol": "STETH", "name": "Lido Staked Ether", "current_price": 4080.0},
    {"id": "ripple", "symbol": "XRP", "name": "XRP", "current_price": 2.85},
    {"id": "the-open-network", "symbol": "TON", "name": "Toncoin", "current_price": 6.2},
    {"id": "dogecoin", "symbol": "DOGE", "name": "Dogecoin", "current_price": 0.48},
    {"id": "cardano", "symbol": "ADA", "name": "Cardano", "current_price": 1.05},
    {"id": "avalanche-2", "symbol": "AVAX", "name": "Avalanche", "current_price": 48.0},
    {"id": "tron", "symbol": "TRX", "name": "TRON", "current_price": 0.27},
    {"id": "chainlink", "symbol": "LINK", "name": "Chainlink", "current_price": 25.5},
    {"id": "polkadot", "symbol": "DOT", "name": "Polkadot", "current_price": 9.1},
    {"id": "matic-network", "symbol": "MATIC", "name": "Polygon", "current_price": 0.62},
    {"id": "litecoin", "symbol": "LTC", "name": "Litecoin", "current_price": 118.0},
    {"id": "shiba-inu", "symbol": "SHIB", "name": "Shiba Inu", "current_price": 0.000027},
    {"id": "uniswap", "symbol": "UNI", "name": "Uniswap", "current_price": 15.2},
    {"id": "stellar", "symbol": "XLM", "name": "Stellar", "current_price": 0.44},
]

REFERENCE_PRICES: dict[str, float] = {coin["id"]: coin["current_price"] for coin in REFERENCE_COINS}

COINLORE_TO_COINGECKO: dict[str, str] = {
    "90": "bitcoin",
    "80": "ethereum",
    "2710": "binancecoin",
    "518": "tether",
    "58": "ripple",
}

# Coinlore name ids that differ from the CoinGecko id of the same coin.
NAMEID_TO_COINGECKO: dict[str, str] = {
    "binance-coin": "binancecoin",
    "xrp": "ripple",
    "polygon": "matic-network",
    "avalanche": "avalanche-2",
    "bnb": "binancecoin",
    "toncoin": "the-open-network",
}
