from cryptotrend.market.schemas import CoinPrice
from cryptotrend.portfolios.schemas import HoldingValuation, Performer, PortfolioSummary


def _pct(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def summarize_holdings(
    portfolio_id: str, holdings: list[dict], prices: dict[str, CoinPrice]
) -> PortfolioSummary:
    """Value holdings at current prices; a coin without a price is valued at 0."""
    if not holdings:
        return PortfolioSummary(
            portfolio_id=portfolio_id,
            total_value=0.0,
            total_invested=0.0,
            total_profit_loss=0.0,
            profit_loss_percentage=0.0,
        )

    rows: list[tuple[dict, float, str]] = []
    for holding in holdings:
        price = prices.get(holding["coin_id"])
        rows.append(
            (holding, price.price_usd if price else 0.0, price.source if price else "unavailable")
        )

    total_value = sum(h["amount"] * current for h, current, _ in rows)
    total_invested = sum(h["amount"] * h["purchase_price"] for h, _, _ in rows)

    valuations: list[HoldingValuation] = []
    for holding, current_price, source in rows:
        current_value = holding["amount"] * current_price
        invested = holding["amount"] * holding["purchase_price"]
        profit_loss = current_value - invested
        valuations.append(
            HoldingValuation(
                holding_id=holding["id"],
                coin_id=holding["coin_id"],
                coin_symbol=holding["coin_symbol"],
                amount=holding["amount"],
                purchase_price=holding["purchase_price"],
                current_price=current_price,
                current_value=round(current_value, 8),
                invested=round(invested, 8),
                profit_loss=round(profit_loss, 8),
                profit_loss_percentage=round(_pct(profit_loss, invested), 4),
                allocation_percentage=round(_pct(current_value, total_value), 4),
                price_source=source,
            )
        )

    ranked = sorted(valuations, key=lambda v: v.profit_loss_percentage, reverse=True)
    total_profit_loss = total_value - total_invested
    return PortfolioSummary(
        portfolio_id=portfolio_id,
        total_value=round(total_value, 8),
        total_invested=round(total_invested, 8),
        total_profit_loss=round(total_profit_loss, 8),
        profit_loss_percentage=round(_pct(total_profit_loss, total_invested), 4),
        best_performer=Performer(
            symbol=ranked[0].coin_symbol,
            profit_loss_percentage=ranked[0].profit_loss_percentage,
        ),
        worst_performer=Performer(
            symbol=ranked[-1].coin_symbol,
            profit_loss_percentage=ranked[-1].profit_loss_percentage,
        ),
        holdings=valuations,
    )


def diversification_score(values: list[float]) -> int:
    """15 points per holding up to 60, plus 20 if the largest position is under
    50% of the portfolio and another 20 if it is under 30%."""
    positive = [value for value in values if value > 0]
    total = sum(positive)
    if not positive or total <= 0:
        return 0

    score = min(len(positive) * 15, 60)
    largest_share = max(positive) / total * 100
    if largest_share < 50:
        score += 20
    if largest_share < 30:
        score += 20
    return min(score, 100)
