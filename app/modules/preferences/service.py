import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from supabase import Client

from app.modules.groups.events import EventLog
from app.modules.groups.schemas import EventType
from app.modules.preferences.schemas import (
    CandidateRequest, CandidateResponse, GroupPreferencesResponse, HostPreferences, PlayerPreferences
)
from app.modules.restaurants.filters import RestaurantFilterBuilder, empty_result
from app.modules.restaurants.schemas import FilterResult

logger = logging.getLogger(__name__)

# Top-level cuisine groups shown to hosts, expanded to the cuisines stored on restaurants
CUISINE_GROUPS: Dict[str, List[str]] = {
    "European": [
        "French", "Italian", "Spanish", "Mediterranean", "Central European", "Eastern European",
        "German", "Polish", "British", "Irish", "Scandinavian", "Danish", "Basque", "Campania",
        "Neapolitan", "Southern-Italian",
    ],
    "Asian": [
        "Chinese", "Japanese", "Japanese Fusion", "Thai", "Korean", "Vietnamese", "Indian",
        "Indonesian", "Nepali", "Pakistani", "Szechuan", "Tibetan",
    ],
    "American": ["American", "South American", "Argentinean", "Latin"],
    "MiddleEastern": ["Arabic", "Turkish", "Lebanese", "Moroccan"],
    "FastFood": ["Fast Food", "Pizza", "Street Food", "Deli", "Soups"],
    "Seafood": ["Seafood"],
    "GrillBarbecue": ["Grill", "Barbecue", "Steakhouse"],
    "CafeBar": ["Cafe", "Bar", "Wine Bar", "Brew Pub", "Beer restaurants", "Pub", "Gastropub", "Dining bars"],
    "FusionContemporary": ["Fusion", "Contemporary", "International", "Healthy"],
    "Japanese_Sushi": ["Sushi"],
    "Misc": [],
}

PRICE_TOKENS = ["$", "$$", "$$$", "$$$$"]

# UI price token -> stored restaurants.price_tag values
PRICE_MAP: Dict[str, List[str]] = {
    "$": ["$"],
    "$$": ["$$ - $$$"],
    "$$$": ["$$ - $$$"],
    "$$$$": ["$$$$"],
}


def normalize_price_tags(tokens) -> List[str]:
    """Map UI tokens to stored tags, dropping unknown tokens and duplicates"""
    out: List[str] = []
    for token in tokens if isinstance(tokens, list) else []:
        for tag in PRICE_MAP.get(token, []):
            if tag not in out:
                out.append(tag)
    return out


def expand_blocked_categories(blocked: List[str]) -> List[str]:
    out: List[str] = []
    for key in blocked or []:
        for cuisine in CUISINE_GROUPS.get(key, []):
            if cuisine not in out:
                out.append(cuisine)
    return out


def apply_price_ceiling(player_tags: List[str], max_price: Optional[str]) -> List[str]:
    """Restrict the player's price tags to the host ceiling.

    No player tags, or none under the ceiling, means everything under it; an
    empty list would otherwise drop the price filter altogether.
    """
    if not max_price:
        return player_tags
    idx = PRICE_TOKENS.index(max_price) if max_price in PRICE_TOKENS else len(PRICE_TOKENS) - 1
    allowed = normalize_price_tags(PRICE_TOKENS[:idx + 1])
    return [t for t in player_tags if t in allowed] or allowed


class PreferencesService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.events = EventLog(supabase)

    def get_preferences(self, group_id: str) -> Optional[GroupPreferencesResponse]:
        result = self.supabase.table("group_preferences")\
            .select("*")\
            .eq("group_id", group_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return GroupPreferencesResponse(**result.data[0])

    def set_preferences(self, group_id: str, user_id: str, prefs: HostPreferences) -> GroupPreferencesResponse:
        """Upsert the group's host preferences and announce them to the group"""
        row = {
            "group_id": group_id,
            **prefs.model_dump(),
            "updated_by": user_id,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        result = self.supabase.table("group_preferences")\
            .upsert(row, on_conflict="group_id")\
            .execute()
        saved = result.data[0] if result.data else row

        self.events.record(group_id, user_id, EventType.host_prefs, {"prefs": prefs.model_dump()})
        logger.info(f"Host preferences updated for group {group_id} by {user_id}")
        return GroupPreferencesResponse(**saved)

    def find_candidates(self, group_id: str, request: CandidateRequest) -> CandidateResponse:
        """Swipe candidates for one player, narrowed by the host's constraints"""
        player = request.player
        host = self.get_preferences(group_id) if request.useHostConstraints else None

        player_tags = normalize_price_tags(player.price)
        price_tags = apply_price_ceiling(player_tags, host.max_price if host else None)

        cuisines_any = list(player.categories) if player.categories is not None else None
        if host and host.blocked_categories and cuisines_any is not None:
            blocked = expand_blocked_categories(host.blocked_categories)
            cuisines_any = [c for c in cuisines_any if c not in blocked]

        # every cuisine the player picked is blocked; an empty list would drop the filter
        if player.categories and cuisines_any == []:
            result = empty_result(request.limit, request.offset)
        else:
            result = self._search(player, request, cuisines_any, price_tags)

        applied = {
            "player": {
                "minRating": player.minRating,
                "price": player.price,
                "cuisines": player.categories or [],
                "city": request.city or None,
            },
            "host": {
                "maxPrice": host.max_price,
                "maxRadius": host.max_radius_km,
                "blockedCategories": host.blocked_categories,
            } if host else None,
            "effective": {
                "priceTags": price_tags,
                "cuisinesAny": cuisines_any,
            },
        }
        return CandidateResponse(
            data=result.items,
            meta={
                "total": result.count,
                "limit": result.pagination.limit,
                "offset": result.pagination.offset,
                "hasMore": result.pagination.hasMore,
                "applied": applied,
            },
        )

    def _search(self, player: PlayerPreferences, request: CandidateRequest,
                cuisines_any: Optional[List[str]], price_tags: List[str]) -> FilterResult:
        return RestaurantFilterBuilder(self.supabase)\
            .search(player.query)\
            .city(request.city)\
            .rating(player.minRating or None)\
            .cuisines(cuisines_any)\
            .price(price_tags, request.includeUnknownPrice)\
            .active_only(True)\
            .sort(request.sortBy, request.sortOrder)\
            .paginate(request.limit, request.offset)\
            .execute()
