"""
Home feed state.

Loads the home payload with the cache-first policy and maps its sections
into renderable HomeSectionItem values.
"""

from typing import Optional

from .app_logger import AppLogger
from .connectivity import ConnectivityMonitor
from .enums import HomeSectionType, NetworkError
from .models import FAQPayload, HomeResponse, HomeSectionItem
from .repositories import CacheFirstLoader, HomeRepository, LoadOutcome
from .services import HomeService


def map_sections(response: HomeResponse) -> list[HomeSectionItem]:
    """
    Resolve each section's ids against the top-level collections.

    Unknown ids are skipped. Banner sections carry no title.
    """
    categories = {category.id: category for category in response.categories}
    shops = {shop.id: shop for shop in response.shops}
    banners = {banner.id: banner for banner in response.banners}

    lookup = {
        HomeSectionType.CATEGORY: categories,
        HomeSectionType.SHOP: shops,
        HomeSectionType.BANNER: banners,
        HomeSectionType.FIXED_BANNER: banners,
    }

    sections = []
    for payload in response.home.sections:
        by_id = lookup[payload.type]
        items = [by_id[item_id] for item_id in payload.ids if item_id in by_id]
        title = None if payload.type == HomeSectionType.BANNER else payload.title
        sections.append(HomeSectionItem(kind=payload.type, items=items, title=title))
    return sections


class HomeFeed:
    """Observable state of the home screen."""

    def __init__(
        self,
        service: HomeService,
        repository: HomeRepository,
        connectivity: ConnectivityMonitor,
        logger: Optional[AppLogger] = None,
    ) -> None:
        self._repository = repository
        self._loader: CacheFirstLoader[HomeResponse] = CacheFirstLoader(
            fetch_cached=repository.fetch_cached,
            save=repository.save,
            fetch_remote=service.fetch_home,
            connectivity=connectivity,
            logger=logger,
        )
        self.data: Optional[HomeResponse] = None
        self.sections: list[HomeSectionItem] = []
        self.faq: Optional[FAQPayload] = None
        self.has_search = False
        self.is_loading = False
        self.load_error: Optional[NetworkError] = None

    async def load(self) -> LoadOutcome[HomeResponse]:
        """Surface cached data, then fresh data when online."""
        self.is_loading = True
        self.load_error = None
        try:
            outcome = await self._loader.load(on_data=self._apply)
        finally:
            self.is_loading = False
        self.load_error = outcome.error
        return outcome

    def _apply(self, response: HomeResponse) -> None:
        self.data = response
        self.sections = map_sections(response)
        self.faq = response.home.faq
        self.has_search = bool(response.home.search)
