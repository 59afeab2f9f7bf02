from unittest.mock import AsyncMock

import asyncio
import pytest
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError, TelegramRetryAfter
from aiogram.methods import SendMessage

from rejabot.services.notifier import Notifier

METHOD = SendMessage(chat_id=1, text="x")


@pytest.fixture
def bot():
    return AsyncMock()


@pytest.mark.asyncio
async def test_send_ok_with_keyboard(bot):
    ok = await Notifier(bot, timeout=7).send("123", "salom", [("✅", "task:done:1")])

    assert ok
    args, kwargs = bot.send_message.call_args
    assert args == (123, "salom")
    assert kwargs["request_timeout"] == 7
    assert kwargs["reply_markup"].inline_keyboard[0][0].callback_data == "task:done:1"


@pytest.mark.asyncio
async def test_send_without_actions_has_no_markup(bot):
    await Notifier(bot).send("123", "salom")
    assert bot.send_message.call_args.kwargs["reply_markup"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [
    TelegramForbiddenError(method=METHOD, message="bot was blocked by the user"),
    TelegramRetryAfter(method=METHOD, message="flood", retry_after=5),
    TelegramBadRequest(method=METHOD, message="chat not found"),
    asyncio.TimeoutError(),
])
async def test_delivery_errors_return_false(bot, exc):
    bot.send_message.side_effect = exc
    assert await Notifier(bot).send("123", "salom") is False


@pytest.mark.asyncio
async def test_bad_chat_id_never_hits_api(bot):
    assert await Notifier(bot).send("not-a-number", "salom") is False
    bot.send_message.assert_not_called()
