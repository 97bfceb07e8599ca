"""Game API endpoints."""

import logging
import time
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Header

from api.schemas import (
    BetRequest,
    ActionRequest,
    CardResponse,
    GameStateResponse,
    HandResponse,
    RoundResultResponse,
)
from api.session import (
    SESSION_KEY_CREATED_AT,
    SESSION_KEY_GAME,
    SESSION_KEY_LAST_ACTIVITY,
    create_session,
    extract_session_id,
    get_session_store,
    session_user,
)
from config import config
from core.cards import Card, Rank, Shoe, Suit
from core.draw import DrawSource, FixedDrawSource, ShoeDrawSource
from core.game import RoundController
from core.game.errors import InsufficientChips, RoundError
from core.game.outcome import Outcome, OutcomeReason, RoundResult
from core.hand import DealtCard, Hand
from core.rules import TableRules
from core.table import Dealer, Player, Side

logger = logging.getLogger(__name__)

router = APIRouter()

# In-memory game cache (for performance, backed by session store)
_games: dict[str, RoundController] = {}


def new_draw_source() -> DrawSource:
    """Build the configured draw source for a new table."""
    if config.game.draw_source == "fixed":
        return FixedDrawSource.reference()
    shoe = Shoe(num_decks=config.game.num_decks, penetration=config.game.penetration)
    shoe.shuffle()
    return ShoeDrawSource(shoe)


def new_game(player_name: str | None = None) -> RoundController:
    """Seat a player at a fresh table with the house defaults."""
    return RoundController(
        player=Player(
            name=player_name or config.game.guest_name,
            chips=config.game.starting_chips,
        ),
        dealer=Dealer(chips=config.game.dealer_chips),
        draw_source=new_draw_source(),
        rules=TableRules.from_config(config.game),
    )


def forget_game(session_id: str) -> None:
    """Drop a cached table."""
    _games.pop(session_id, None)


def _serialize_card(card: Card) -> dict[str, int]:
    """Serialize a card to a dict."""
    return {"rank": card.rank.value, "suit": card.suit.value}


def _deserialize_card(data: dict[str, int]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]))


def _serialize_hand(hand: Hand) -> list[dict[str, Any]]:
    """Serialize a hand to a list of cards with their visibility."""
    return [
        {**_serialize_card(dealt.card), "face_down": dealt.face_down}
        for dealt in hand.cards
    ]


def _deserialize_hand(data: list[dict[str, Any]]) -> Hand:
    """Deserialize a hand."""
    return Hand(cards=[
        DealtCard(_deserialize_card(c), face_down=c["face_down"]) for c in data
    ])


def _serialize_draw_source(source: DrawSource) -> dict[str, Any]:
    """Serialize the draw source so a restored table continues the same cards."""
    if isinstance(source, FixedDrawSource):
        sequences = source.sequences
        cursors = source.cursors
        return {
            "kind": "fixed",
            "player": [_serialize_card(c) for c in sequences[Side.PLAYER]],
            "dealer": [_serialize_card(c) for c in sequences[Side.DEALER]],
            "player_cursor": cursors[Side.PLAYER],
            "dealer_cursor": cursors[Side.DEALER],
        }
    if isinstance(source, ShoeDrawSource):
        return {
            "kind": "shoe",
            "cards": [_serialize_card(c) for c in source.shoe],
            "num_decks": source.shoe.num_decks,
            "penetration": source.shoe.penetration,
        }
    raise TypeError(f"Cannot persist draw source {type(source).__name__}")


def _deserialize_draw_source(data: dict[str, Any]) -> DrawSource:
    """Restore a draw source."""
    if data["kind"] == "fixed":
        source = FixedDrawSource(
            player=[_deserialize_card(c) for c in data["player"]],
            dealer=[_deserialize_card(c) for c in data["dealer"]],
        )
        source.seek(Side.PLAYER, data["player_cursor"])
        source.seek(Side.DEALER, data["dealer_cursor"])
        return source

    shoe = Shoe(num_decks=data["num_decks"], penetration=data["penetration"])
    shoe.load([_deserialize_card(c) for c in data["cards"]])
    return ShoeDrawSource(shoe)


def _serialize_result(result: RoundResult | None) -> dict[str, Any] | None:
    if result is None:
        return None
    return {
        "outcome": result.outcome.value,
        "reason": result.reason.value,
        "player_score": result.player_score,
        "dealer_score": result.dealer_score,
    }


def _deserialize_result(data: dict[str, Any] | None) -> RoundResult | None:
    if data is None:
        return None
    return RoundResult(
        outcome=Outcome(data["outcome"]),
        reason=OutcomeReason(data["reason"]),
        player_score=data["player_score"],
        dealer_score=data["dealer_score"],
    )


def _serialize_game(game: RoundController) -> dict[str, Any]:
    """Serialize table state for session storage."""
    return {
        "state": game._machine_state,
        "player": {
            "name": game.player.name,
            "chips": game.player.chips,
            "bet": game.player.bet,
        },
        "dealer_chips": game.dealer.chips,
        "player_hand": _serialize_hand(game.player_hand),
        "dealer_hand": _serialize_hand(game.dealer_hand),
        "doubled": game.is_doubled,
        "player_final_score": game._player_final_score,
        "result": _serialize_result(game.result),
        "draw_source": _serialize_draw_source(game.draw_source),
        "rules": {
            "dealer_stands_on": game.rules.dealer_stands_on,
            "chip_denominations": list(game.rules.chip_denominations),
        },
    }


def _deserialize_game(data: dict[str, Any]) -> RoundController:
    """Restore a table from session data."""
    rules = TableRules(
        dealer_stands_on=data["rules"]["dealer_stands_on"],
        chip_denominations=tuple(data["rules"]["chip_denominations"]),
    )
    game = RoundController(
        player=Player(**data["player"]),
        dealer=Dealer(chips=data["dealer_chips"]),
        draw_source=_deserialize_draw_source(data["draw_source"]),
        rules=rules,
    )

    # Restore state machine state
    game._machine_state = data["state"]

    game.player_hand = _deserialize_hand(data["player_hand"])
    game.dealer_hand = _deserialize_hand(data["dealer_hand"])
    game._doubled = data["doubled"]
    game._player_final_score = data["player_final_score"]
    game._result = _deserialize_result(data["result"])
    return game


def _require_valid_session(session_id: str) -> None:
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")


async def _load_game(session_id: str) -> RoundController | None:
    """Load game from session store."""
    store = await get_session_store()
    session_data = await store.get(session_id)
    if session_data and session_data.get(SESSION_KEY_GAME):
        return _deserialize_game(session_data[SESSION_KEY_GAME])
    return None


async def save_game(session_id: str, game: RoundController) -> None:
    """Save game to session store."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_GAME] = _serialize_game(game)
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    if SESSION_KEY_CREATED_AT not in session_data:
        session_data[SESSION_KEY_CREATED_AT] = int(time.time())
    await store.set(session_id, session_data)


async def _player_name(session_id: str) -> str | None:
    user = await session_user(session_id)
    return user.get("full_name") if user else None


async def get_game(session_id: str) -> RoundController:
    """Get the session's table, creating one with house defaults on first load."""
    _require_valid_session(session_id)

    # Check memory cache first
    if session_id in _games:
        return _games[session_id]

    # Try to load from session store
    game = await _load_game(session_id)
    if game is not None:
        _games[session_id] = game
        return game

    game = new_game(await _player_name(session_id))
    logger.info("Opened table for %s with %d chips", game.player.name, game.player.chips)
    _games[session_id] = game
    await save_game(session_id, game)
    return game


def _rejection(game: RoundController) -> HTTPException:
    """Translate the controller's last rejection into an HTTP error."""
    error: RoundError | None = game.last_rejection
    status = 409 if isinstance(error, InsufficientChips) else 400
    return HTTPException(status_code=status, detail=str(error) if error else "Action rejected")


def _hand_to_response(hand: Hand) -> HandResponse:
    """Convert a Hand to HandResponse, masking face-down cards."""
    return HandResponse(
        cards=[
            CardResponse(rank=None, suit=None, hidden=True)
            if dealt.face_down
            else CardResponse(rank=str(dealt.card.rank), suit=dealt.card.suit.label)
            for dealt in hand.cards
        ],
        score=hand.score,
    )


def game_state_response(game: RoundController) -> GameStateResponse:
    """Convert table state to response."""
    result = None
    if game.result is not None:
        result = RoundResultResponse(
            outcome=game.result.outcome.value,
            reason=game.result.reason.value,
            player_score=game.result.player_score,
            dealer_score=game.result.dealer_score,
        )

    return GameStateResponse(
        state=game.state.name,
        player_name=game.player.name,
        chips=game.player.chips,
        dealer_chips=game.dealer.chips,
        bet=game.player.bet,
        player_hand=_hand_to_response(game.player_hand),
        dealer_hand=_hand_to_response(game.dealer_hand),
        result=result,
        chip_denominations=list(game.rules.chip_denominations),
        can_bet=game.can_bet,
        can_hit=game.can_hit,
        can_stand=game.can_stand,
        can_double=game.can_double,
        can_reset=game.can_reset,
    )


@router.post("/new")
async def new_table(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> dict[str, str]:
    """Open a fresh table, creating a guest session if needed."""
    if session_id is None:
        session_id = await create_session()
    _require_valid_session(session_id)

    game = new_game(await _player_name(session_id))
    _games[session_id] = game
    await save_game(session_id, game)

    return {"session_id": session_id}


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Get current table state."""
    game = await get_game(session_id)
    return game_state_response(game)


@router.post("/bet")
async def place_bet(
    request: BetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Place a bet and deal cards."""
    game = await get_game(session_id)

    if not game.bet(request.amount):
        raise _rejection(game)

    await save_game(session_id, game)
    return game_state_response(game)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Execute a player action."""
    game = await get_game(session_id)

    actions = {
        "hit": game.hit,
        "stand": game.stand,
        "double": game.double,
    }

    if not actions[request.action]():
        raise _rejection(game)

    await save_game(session_id, game)
    return game_state_response(game)


@router.post("/reset")
async def reset_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Clear a settled round and return to betting."""
    game = await get_game(session_id)

    if not game.reset():
        raise _rejection(game)

    await save_game(session_id, game)
    return game_state_response(game)
