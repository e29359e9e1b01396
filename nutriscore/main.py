"""Nutriscore API - Entry point.

Runs the scoring engine behind a small JSON API served by uvicorn.
"""

import logging
import os
from datetime import date

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .shell import service
from .shell.service import NotFoundError


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def _success(data, message: str | None = None) -> JSONResponse:
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return JSONResponse(body)


def _parse_date(value: str | None, name: str) -> date:
    """Parse a YYYY-MM-DD parameter, raising ValueError if missing or malformed."""
    if not value:
        raise ValueError(f"{name} parameter is required")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError(f"{name} must be a date in YYYY-MM-DD format") from None


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "healthy", "service": "nutriscore"})


async def food_score(request: Request) -> JSONResponse:
    """Score one stored food."""
    food_id = request.path_params["food_id"]
    try:
        result = service.score_food(food_id, request.query_params.get("meal_type"))
        return _success(result, "Nutrition score calculated successfully")
    except NotFoundError as e:
        return _error(str(e), 404)
    except Exception as e:
        logger.error("Scoring food %s failed: %s", food_id, str(e))
        return _error("Failed to calculate nutrition score.", 500)


async def meal_score(request: Request) -> JSONResponse:
    """Score several stored foods as one meal."""
    body = await _json_body(request)
    food_ids = body.get("food_ids")

    if not isinstance(food_ids, list) or not food_ids:
        return _error("Please provide an array of food IDs", 400)

    try:
        result = service.score_meal(body.get("user_id"), food_ids, body.get("meal_type"))
        return _success(result, "Meal nutrition score calculated successfully")
    except NotFoundError as e:
        return _error(str(e), 404)
    except ValueError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error("Scoring meal failed: %s", str(e))
        return _error("Failed to calculate meal nutrition score.", 500)


async def generate_comments(request: Request) -> JSONResponse:
    """Generate and store comments for a food."""
    food_id = request.path_params["food_id"]
    body = await _json_body(request)

    try:
        result = service.generate_food_comments(
            food_id, body.get("target_nutrition_id"), body.get("meal_type")
        )
        return _success(result, "Nutrition comments generated successfully")
    except NotFoundError as e:
        return _error(str(e), 404)
    except Exception as e:
        logger.error("Generating comments for %s failed: %s", food_id, str(e))
        return _error("Failed to generate nutrition comments.", 500)


async def list_comments(request: Request) -> JSONResponse:
    """Stored comments for a food."""
    food_id = request.path_params["food_id"]
    try:
        return _success(service.get_food_comments(food_id))
    except NotFoundError as e:
        return _error(str(e), 404)


async def update_comment(request: Request) -> JSONResponse:
    """Replace a stored comment with free-form text."""
    food_id = request.path_params["food_id"]
    comment_id = request.path_params["comment_id"]
    body = await _json_body(request)
    text = body.get("comment")

    if not isinstance(text, str):
        return _error("comment is required", 400)

    try:
        result = service.update_food_comment(food_id, comment_id, text)
        return _success(result, "Nutrition comment updated successfully")
    except NotFoundError as e:
        return _error(str(e), 404)
    except ValueError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error("Updating comment %s failed: %s", comment_id, str(e))
        return _error("Failed to update nutrition comment.", 500)


async def get_daily_nutrition(request: Request) -> JSONResponse:
    """Daily total and progress for a user and date."""
    user_id = request.query_params.get("user_id")
    if not user_id:
        return _error("user_id parameter is required", 400)

    try:
        log_date = _parse_date(request.query_params.get("date"), "date")
        return _success(service.get_daily_nutrition(user_id, log_date))
    except ValueError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error("Daily nutrition for %s failed: %s", user_id[:8], str(e))
        return _error("Failed to get daily nutrition summary.", 500)


async def update_daily_nutrition(request: Request) -> JSONResponse:
    """Recompute a user's total for a date."""
    body = await _json_body(request)
    user_id = body.get("user_id")
    if not user_id:
        return _error("user_id is required", 400)

    try:
        log_date = _parse_date(body.get("date"), "date")
        result = service.update_daily_nutrition(user_id, log_date)
        return _success(result, "Daily nutrition updated successfully")
    except ValueError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error("Updating daily nutrition for %s failed: %s", user_id[:8], str(e))
        return _error("Failed to update daily nutrition.", 500)


async def daily_nutrition_range(request: Request) -> JSONResponse:
    """Stored daily totals for a date range."""
    params = request.query_params
    user_id = params.get("user_id")
    if not user_id:
        return _error("user_id parameter is required", 400)

    try:
        start = _parse_date(params.get("start_date"), "start_date")
        end = _parse_date(params.get("end_date"), "end_date")
        return _success(service.get_daily_nutrition_range(user_id, start, end))
    except ValueError as e:
        return _error(str(e), 400)


# ==================== Create ASGI App ====================


def create_app() -> Starlette:
    """Create the Starlette application."""
    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/nutrition/score/{food_id}", food_score, methods=["GET"]),
        Route("/nutrition/meal-score", meal_score, methods=["POST"]),
        Route("/nutrition/comments/{food_id}", generate_comments, methods=["POST"]),
        Route("/nutrition/comments/{food_id}", list_comments, methods=["GET"]),
        Route(
            "/nutrition/comments/{food_id}/{comment_id}", update_comment, methods=["PUT"]
        ),
        Route("/daily-nutrition", get_daily_nutrition, methods=["GET"]),
        Route("/daily-nutrition", update_daily_nutrition, methods=["POST"]),
        Route("/daily-nutrition/range", daily_nutrition_range, methods=["GET"]),
    ]

    allowed_origins = os.environ.get("ALLOWED_ORIGINS", "http://localhost:8081")

    return Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=[o.strip() for o in allowed_origins.split(",") if o.strip()],
                allow_methods=["GET", "POST", "PUT", "OPTIONS"],
                allow_headers=["*"],
            ),
        ],
    )


# Create app at module level for uvicorn
app = create_app()


def main() -> None:
    """Run the server."""
    port = int(os.environ.get("PORT", 8080))
    host = os.environ.get("HOST", "0.0.0.0")

    logger.info("Starting nutriscore API on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
