from fastapi import APIRouter, Depends
from spin_league.api.dependencies import get_score_keeper
from spin_league.api.matches.models import ScoreRequest, ManualScoreRequest, MatchResponse
from spin_league.competition import ScoreKeeper

router = APIRouter()

@router.post("/matches/{match_id}/score", response_model=MatchResponse)
async def record_win(
    match_id: int,
    score_data: ScoreRequest,
    keeper: ScoreKeeper = Depends(get_score_keeper)
):
    """Record one round won by a player"""
    return await keeper.record_win(match_id, score_data.winner_id, score_data.win_type)

@router.post("/matches/{match_id}/manual", response_model=MatchResponse)
async def set_manual_score(
    match_id: int,
    score_data: ManualScoreRequest,
    keeper: ScoreKeeper = Depends(get_score_keeper)
):
    """Overwrite both scores of a match"""
    return await keeper.record_manual_score(match_id, score_data.score_p1, score_data.score_p2)

@router.post("/matches/{match_id}/reset", response_model=MatchResponse)
async def reset_match(
    match_id: int,
    keeper: ScoreKeeper = Depends(get_score_keeper)
):
    return await keeper.reset(match_id)
