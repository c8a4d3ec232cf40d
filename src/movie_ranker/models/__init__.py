from .battle import VersusBattle
from .ranking_item import GlobalRating, RankingListItem
from .ranking_list import RankingList

__all__ = ["GlobalRating", "RankingList", "RankingListItem", "VersusBattle"]
