"""
Async LiteLLM access for the chapter analysis call.

The analyzer only needs the text of the first choice; the raw response is kept
alongside it for logging and debugging.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Sequence

from litellm import acompletion

ChatMessage = Mapping[str, Any]


@dataclass
class ChatResult:
    """Text of the first completion choice plus the provider response."""

    text: str
    raw: Any


CompletionCallable = Callable[..., Awaitable[ChatResult]]


def _first_choice_text(response: Any) -> str:
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("Unexpected LiteLLM response format.") from exc

    # Blocked or empty generations come back with ``content=None``.
    if content is None:
        return ""
    return str(content).strip()


async def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Send one chat request through ``litellm.acompletion``.

    Optional settings left as ``None`` are omitted so provider defaults apply.
    Extra keyword arguments (``response_format``, ``timeout`` ...) pass through.
    """
    optional = {"temperature": temperature, "max_tokens": max_tokens, "api_key": api_key}
    request: dict[str, Any] = {"model": model, "messages": list(messages)}
    request.update({key: value for key, value in optional.items() if value is not None})
    request.update(extra_kwargs)

    response = await acompletion(**request)
    return ChatResult(text=_first_choice_text(response), raw=response)
