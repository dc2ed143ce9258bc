from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, conint, conlist
from functools import lru_cache
from typing import Any, Dict, Tuple
import logging

from dicetribution.dice import COMMON_DICE, InvalidInputError, format_notation, group_dice
from dicetribution.distribution import Distribution, build
from dicetribution.queries import cumulative_stats, cumulative_table, modifier_impact

logger = logging.getLogger(__name__)


class WebConfig:
    default_dice = (6, 6)
    default_target = 7
    default_modifier = 1
    cache_size = 256
    # Upper bounds on request size; the lower bound on sides is enforced by the engine
    max_sides = 100
    max_dice = 50


class DiceRequest(BaseModel):
    dice: conlist(conint(le=WebConfig.max_sides), max_length=WebConfig.max_dice)  # type: ignore[valid-type]


class StatsRequest(DiceRequest):
    target: int


class ImpactRequest(StatsRequest):
    modifier: int


app = FastAPI(title="Dicetribution")


@lru_cache(maxsize=WebConfig.cache_size)
def get_distribution(dice: Tuple[int, ...]) -> Distribution:
    # A changed dice list is a new key, so stale distributions are never served
    return build(dice)


def describe(dice: Tuple[int, ...], dist: Distribution) -> Dict[str, Any]:
    return {
        "dice": list(dice),
        "notation": format_notation(dice),
        "groups": [group.to_dict() for group in group_dice(dice)],
        "totalCombinations": dist.total_combinations,
        "minSum": dist.min_sum,
        "maxSum": dist.max_sum,
        "mostLikely": dist.most_likely(),
    }


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.warning("Rejected dice on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "index": exc.index, "sides": exc.sides},
    )


@app.get("/")
async def home() -> Dict[str, Any]:
    dice = tuple(WebConfig.default_dice)
    dist = get_distribution(dice)
    return {
        **describe(dice, dist),
        "commonDice": list(COMMON_DICE),
        "target": WebConfig.default_target,
        "modifier": WebConfig.default_modifier,
        "stats": cumulative_stats(dist, WebConfig.default_target).to_dict(),
        "modifierImpact": modifier_impact(dist, WebConfig.default_target, WebConfig.default_modifier).to_dict(),
    }


@app.post("/distribution")
def distribution(body: DiceRequest) -> Dict[str, Any]:
    dice = tuple(body.dice)
    dist = get_distribution(dice)
    logger.info("Distribution for %s: %d sums", format_notation(dice) or "no dice", len(dist.combinations))
    return {
        **describe(dice, dist),
        "table": [row.to_dict() for row in cumulative_table(dist)],
    }


@app.post("/stats")
def stats(body: StatsRequest) -> Dict[str, Any]:
    dist = get_distribution(tuple(body.dice))
    logger.info("Stats for target %d", body.target)
    return {
        "target": body.target,
        "count": dist.count(body.target),
        "totalCombinations": dist.total_combinations,
        "stats": cumulative_stats(dist, body.target).to_dict(),
    }


@app.post("/impact")
def impact(body: ImpactRequest) -> Dict[str, Any]:
    dist = get_distribution(tuple(body.dice))
    logger.info("Modifier %+d against target %d", body.modifier, body.target)
    return {
        "target": body.target,
        "modifier": body.modifier,
        "base": cumulative_stats(dist, body.target).to_dict(),
        **modifier_impact(dist, body.target, body.modifier).to_dict(),
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="127.0.0.1", port=8000)
