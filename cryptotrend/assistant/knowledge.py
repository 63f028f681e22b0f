"""Canned answers served when the language model is unavailable."""

import re

# Checked in order; the first topic with a matching keyword answers.
KNOWLEDGE_BASE: list[tuple[tuple[str, ...], str]] = [
    (
        ("bitcoin", "btc"),
        "Bitcoin (BTC) is the first and largest cryptocurrency by market cap. Created by "
        "Satoshi Nakamoto in 2009, it runs on a decentralized network and is often called "
        '"digital gold" for its store of value properties.',
    ),
    (
        ("ethereum", "eth"),
        "Ethereum (ETH) is a blockchain platform for smart contracts and decentralized "
        "applications. Launched in 2015, it is the second-largest cryptocurrency and the "
        "foundation for most DeFi protocols.",
    ),
    (
        ("invest", "buy", "should i"),
        "Cryptocurrency investing carries high risk and volatility. Only invest what you can "
        "afford to lose, diversify your portfolio, do your own research, and consider "
        "dollar-cost averaging for long-term positions.",
    ),
    (
        ("defi", "decentralized finance"),
        "DeFi (Decentralized Finance) refers to financial services built on blockchain "
        "networks, primarily Ethereum. It covers lending, borrowing, trading and yield farming "
        "without traditional intermediaries.",
    ),
    (
        ("nft", "non-fungible"),
        "NFTs (Non-Fungible Tokens) are unique digital assets stored on a blockchain. They "
        "represent ownership of digital art, collectibles, gaming items or other unique content.",
    ),
    (
        ("wallet", "store"),
        "Crypto wallets hold your private keys and let you interact with blockchain networks. "
        "Hardware wallets are the safest option for large amounts; software wallets are more "
        "convenient for daily use.",
    ),
    (
        ("mining", "mine"),
        "Mining uses computational power to validate transactions and secure a blockchain. "
        "Bitcoin uses Proof-of-Work mining, while Ethereum has moved to Proof-of-Stake.",
    ),
    (
        ("staking", "stake"),
        "Staking locks up coins to support a Proof-of-Stake network in exchange for rewards. "
        "Ethereum, Cardano and Solana all support staking, typically yielding 4-12% a year.",
    ),
    (
        ("altcoin", "alternative"),
        "Altcoins are all cryptocurrencies other than Bitcoin, from established platforms like "
        "Ethereum to newer utility tokens and meme coins with widely varying risk.",
    ),
    (
        ("market cap", "marketcap"),
        "Market capitalization is a coin's current price multiplied by its circulating supply. "
        "It is the standard way to compare the size of different cryptocurrencies.",
    ),
    (
        ("volatility", "volatile"),
        "Crypto markets are highly volatile because of regulatory news, sentiment swings, "
        "adoption changes and their small size relative to traditional assets.",
    ),
    (
        ("regulation", "legal"),
        "Crypto regulation varies by country and is evolving quickly. Some jurisdictions embrace "
        "it, others restrict it, and many are still drafting comprehensive frameworks.",
    ),
    (
        ("price", "prediction", "forecast"),
        "Crypto prices are driven by supply and demand, adoption, regulation, sentiment and "
        "macroeconomic factors. Price predictions are speculative, so never invest more than "
        "you can afford to lose.",
    ),
]

DEFAULT_ANSWER = (
    "I'm here to help with cryptocurrency questions! Ask about Bitcoin, Ethereum, DeFi, "
    "investing strategies, wallets, staking, market analysis or other crypto topics."
)

_CAPACITY_NOTE = "AI assistant is temporarily at capacity. The information above is from our knowledge base."
_CONNECTION_NOTE = "Connection issue detected. The information above is from our knowledge base."
_UNAVAILABLE_NOTE = "AI assistant is temporarily unavailable. The information above is from our knowledge base."


def knowledge_answer(question: str) -> str:
    lowered = question.lower()
    for keywords, answer in KNOWLEDGE_BASE:
        if any(re.search(rf"\b{re.escape(keyword)}", lowered) for keyword in keywords):
            return answer
    return DEFAULT_ANSWER


def status_note(error: BaseException | None) -> str:
    text = str(error).lower() if error is not None else ""
    if "quota" in text or "rate limit" in text or "429" in text:
        return _CAPACITY_NOTE
    if "connect" in text or "network" in text or "timeout" in text:
        return _CONNECTION_NOTE
    return _UNAVAILABLE_NOTE


def fallback_answer(question: str, error: BaseException | None = None) -> str:
    return f"{knowledge_answer(question)}\n\n{status_note(error)}"
