"""FastAPI facade exposing the swipe deck and liked items to a thin front-end."""

import os

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from logic.swipe_engine import Direction
from models.outfit_item import LikedItem, OutfitItem
from stylist_app.app import StylistApp
from stylist_app.logging_config import configure_logging
from tools.errors import NotAuthenticatedError, StylistApiError

configure_logging()


class DeckStartRequest(BaseModel):
    """Request payload for opening the deck on one tab."""

    personal_color_type: str = Field(..., description="Label such as 'Deep Autumn'")
    category: str = Field("Top", description="UI category: Top, Bottom or Shoes")


class SwipeRequest(BaseModel):
    direction: Direction


def _item_payload(item: OutfitItem | None) -> dict | None:
    if item is None:
        return None
    return {
        "id": item.id,
        "description": item.description,
        "price": item.price,
        "image_url": item.image_url,
        "color_hex": item.color_hex,
        "color_name": item.color_name,
        "product_url": item.product_url,
        "type": item.type,
        "personal_color_type": item.personal_color_type,
    }


def _liked_payload(item: LikedItem) -> dict:
    return {**_item_payload(item), "category": item.category, "liked_at": item.liked_at}


def create_app(stylist: StylistApp | None = None) -> FastAPI:
    """Build the ASGI app around a (possibly injected) client instance."""

    stylist_app = stylist or StylistApp()
    app = FastAPI(title="Stylist Client", version="0.1.0")
    app.state.stylist = stylist_app

    def _deck_state() -> dict:
        deck = stylist_app.deck
        return {
            "state": deck.state.value,
            "index": deck.index,
            "category": stylist_app.buffer.category,
            "subcategory": stylist_app.buffer.current_subcategory,
            "item": _item_payload(deck.current_item),
            "load_error": str(deck.load_error) if deck.load_error else None,
        }

    @app.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {
            "status": "ok",
            "service": "stylist-client",
            "environment": stylist_app.config.environment or "local",
            "backend": stylist_app.config.api_base_url,
            "authenticated": stylist_app.config.is_authenticated,
        }

    @app.post("/deck/start")
    def start_deck(request: DeckStartRequest) -> dict:
        try:
            stylist_app.open_deck(request.personal_color_type, request.category)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except StylistApiError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return _deck_state()

    @app.get("/deck/current")
    def current_card() -> dict:
        return _deck_state()

    @app.post("/deck/swipe")
    def swipe(request: SwipeRequest) -> dict:
        decision = stylist_app.deck.swipe(request.direction)
        if decision is None:
            raise HTTPException(status_code=409, detail="No card available to swipe")
        return {"decision": {"item_id": decision.item.id, "direction": decision.direction.value}, **_deck_state()}

    @app.post("/deck/start-over")
    def start_over() -> dict:
        try:
            stylist_app.deck.start_over()
        except StylistApiError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except RuntimeError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _deck_state()

    @app.get("/liked")
    def liked() -> dict:
        try:
            grouped = stylist_app.liked_items()
        except NotAuthenticatedError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except StylistApiError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {category: [_liked_payload(item) for item in items] for category, items in grouped.items()}

    @app.delete("/liked/{category}/{item_id}")
    def remove_liked(category: str, item_id: int) -> dict:
        try:
            removed = stylist_app.remove_liked(category, item_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except NotAuthenticatedError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except StylistApiError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        if not removed:
            raise HTTPException(status_code=404, detail="Liked item not found")
        return {"removed": True}

    return app


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=int(os.getenv("PORT", "8080")), reload=False)
