"""Tests for the news keyword heuristics."""

import pytest

from cryptotrend.news.classify import (
    determine_category,
    determine_impact,
    determine_sentiment,
    is_crypto_relevant,
    truncate_description,
)
from cryptotrend.news.schemas import NewsCategory, NewsImpact, NewsSentiment


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Bitcoin rally fuels institutional adoption", NewsSentiment.positive),
        ("Exchange hack sparks crash and losses", NewsSentiment.negative),
        ("Bitcoin rally meets regulation concern", NewsSentiment.negative),
        ("Developers ship a routine client update", NewsSentiment.neutral),
    ],
)
def test_sentiment(text, expected):
    assert determine_sentiment(text) is expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("BTC miners expand", NewsCategory.bitcoin),
        ("Ethereum smart contract audit", NewsCategory.ethereum),
        ("New DEX launches yield vaults", NewsCategory.defi),
        ("OpenSea volumes drop", NewsCategory.nft),
        ("Lawmakers debate compliance rules", NewsCategory.regulation),
        ("Stablecoins grow", NewsCategory.general),
    ],
)
def test_category(text, expected):
    assert determine_category(text) is expected


def test_category_order_prefers_bitcoin():
    assert determine_category("Bitcoin regulation hearing") is NewsCategory.bitcoin


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Breaking: record inflows", NewsImpact.high),
        ("A significant upgrade lands", NewsImpact.medium),
        ("Weekly roundup", NewsImpact.low),
    ],
)
def test_impact(title, expected):
    assert determine_impact(title) is expected


class TestTruncateDescription:
    def test_long_text_is_cut_to_25_words(self):
        text = " ".join(f"w{i}" for i in range(40))
        truncated = truncate_description(text)

        assert truncated.endswith("...")
        assert len(truncated[:-3].split()) == 25

    def test_short_text_unchanged(self):
        assert truncate_description("Short and sweet") == "Short and sweet"

    def test_missing_text(self):
        assert truncate_description(None) == "No description available"


def test_relevance():
    assert is_crypto_relevant("New wallet supports Web3 logins")
    assert not is_crypto_relevant("Local bakery wins award")
