"""Inline "actions" payloads offered to users."""

import time

from .types import Action, ActionsContent

MAX_ACTIONS = 10
CAT_IMAGE_URL = "https://cataas.com/cat"


def _content_id() -> str:
    return f"help-{int(time.time() * 1000)}"


def _build(description: str, actions: list[Action]) -> ActionsContent:
    if len(actions) > MAX_ACTIONS:
        raise ValueError(f"At most {MAX_ACTIONS} actions are allowed, got {len(actions)}")
    ids = [action.id for action in actions]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Action ids must be unique: {ids}")
    return ActionsContent(id=_content_id(), description=description, actions=actions)


def _transfer_actions(image_url: str | None = None) -> list[Action]:
    return [
        Action("send-small", "Send 0.005 USDC", image_url=image_url),
        Action("send-large", "Send 1 usdc", image_url=image_url),
        Action("check-balance", "Check balance", image_url=image_url),
    ]


def actions_content() -> ActionsContent:
    return _build(
        "Glad to help you out! Here are some actions you can take:",
        _transfer_actions(),
    )


def actions_with_images_content() -> ActionsContent:
    return _build(
        "Glad to help you out! Here are some actions you can take with images:",
        _transfer_actions(CAT_IMAGE_URL),
    )


def help_content(network_name: str) -> ActionsContent:
    description = (
        "👋 Welcome to TBA Chat Example Bot!\n\n"
        f"I'm here to help you interact with {network_name} blockchain. "
        "I can help you send tokens, check balances, and more!\n\n"
        "✨ Choose an action below to get started:"
    )
    return _build(description, [
        Action("show-actions", "🚀 Show me actions"),
        Action("show-actions-with-images", "🖼️ Show me actions with images"),
        Action("check-balance", "💰 Check balance"),
        Action("more-info", "ℹ️ More info", style="secondary"),
    ])
