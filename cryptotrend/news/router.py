from fastapi import APIRouter, Query

from cryptotrend.dependencies import CurrentUserId, NewsServiceDep
from cryptotrend.news.schemas import NewsArticle, NewsFeed

router = APIRouter()


@router.get("/", response_model=NewsFeed)
async def get_news(service: NewsServiceDep, _user: CurrentUserId) -> NewsFeed:
    return await service.get_feed()


@router.get("/search", response_model=list[NewsArticle])
async def search_news(
    service: NewsServiceDep,
    _user: CurrentUserId,
    q: str = Query(default="", max_length=200),
) -> list[NewsArticle]:
    return await service.search(q)
