"""
Consensus over swipe submissions.

Submissions are consumed in arrival order; a later submission from the same
user replaces the earlier one. Each retained submitter counts at most once per
restaurant. A restaurant is in the consensus when every submitter accepted it.
"""
from typing import Any, Dict, Iterable, List, Mapping

from app.modules.rounds.schemas import AgreementEntry, ConsensusResult

TOP_AGREEMENT_SIZE = 5

_BLANK_IDS = {"", "null", "undefined", "None"}


def _clean_ids(ids: Any) -> List[str]:
    if not isinstance(ids, (list, tuple)):
        return []
    cleaned = []
    for rid in ids:
        if rid is None:
            continue
        key = str(rid).strip()
        if key in _BLANK_IDS:
            continue
        cleaned.append(key)
    # dict.fromkeys keeps first-seen order while dropping duplicates
    return list(dict.fromkeys(cleaned))


def latest_per_user(submissions: Iterable[Mapping[str, Any]]) -> Dict[str, List[str]]:
    by_user: Dict[str, List[str]] = {}
    for row in submissions:
        user_id = row.get("user_id")
        if not user_id:
            continue
        by_user[str(user_id)] = _clean_ids(row.get("accepted_ids"))
    return by_user


def compute_consensus(submissions: Iterable[Mapping[str, Any]]) -> ConsensusResult:
    rows = list(submissions)
    by_user = latest_per_user(rows)
    submitters = len(by_user)

    counts: Dict[str, int] = {}
    for accepted in by_user.values():
        for rid in accepted:
            counts[rid] = counts.get(rid, 0) + 1

    if submitters == 0:
        return ConsensusResult(submissions_considered=len(rows))

    percentages = {rid: count / submitters for rid, count in counts.items()}
    consensus_ids = [rid for rid, count in counts.items() if count == submitters]
    ranked = sorted(percentages.items(), key=lambda item: (-item[1], item[0]))
    top_agreement = [AgreementEntry(id=rid, pct=pct) for rid, pct in ranked[:TOP_AGREEMENT_SIZE]]

    return ConsensusResult(
        submitters=submitters,
        counts=counts,
        percentages=percentages,
        consensus_ids=consensus_ids,
        top_agreement=top_agreement,
        submissions_considered=len(rows),
    )
