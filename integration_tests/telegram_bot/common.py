from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv
from telethon import TelegramClient, events
from telethon.errors import SessionPasswordNeededError
from telethon.tl.custom.message import Message

logger = logging.getLogger(__name__)

load_dotenv()


@dataclass
class TestConfig:
    api_id: int
    api_hash: str
    phone_number: str
    bot_username: str
    session_path: Path
    link_code: Optional[str] = None

    @classmethod
    def from_env(cls) -> "TestConfig":
        try:
            api_id = int(os.environ["TELEGRAM_TEST_API_ID"])
            api_hash = os.environ["TELEGRAM_TEST_API_HASH"]
            phone = os.environ["TELEGRAM_TEST_PHONE"]
            bot_username = os.environ["TELEGRAM_BOT_USERNAME"]
        except KeyError as exc:
            raise SystemExit(f"Missing required env var: {exc.args[0]}") from exc

        session_file = Path(
            os.environ.get("TELEGRAM_TEST_SESSION", "integration_tests/telegram_bot/test_user.session")
        )
        session_file.parent.mkdir(parents=True, exist_ok=True)
        return cls(
            api_id=api_id,
            api_hash=api_hash,
            phone_number=phone,
            bot_username=bot_username,
            session_path=session_file,
            link_code=os.environ.get("FINTRACK_TEST_LINK_CODE") or None,
        )

    def client(self) -> TelegramClient:
        return TelegramClient(str(self.session_path), self.api_id, self.api_hash)


class TelegramBotInteractor:
    """Sends messages as a real user and waits for the bot's matching reply."""

    def __init__(self, client: TelegramClient, bot_username: str) -> None:
        self.client = client
        self.bot_username = bot_username
        self._bot_entity = None

    async def initialise(self) -> None:
        self._bot_entity = await self.client.get_entity(self.bot_username)

    async def send_and_expect(
        self,
        text: str,
        expectations: list[str] | str,
        *,
        timeout: float = 60.0,
    ) -> Message:
        wanted = [expectations] if isinstance(expectations, str) else expectations
        wanted = [item.lower() for item in wanted]

        def predicate(msg: Message) -> bool:
            body = (msg.raw_text or "").lower()
            return bool(body) and any(item in body for item in wanted)

        return await self._send_and_wait(text, predicate, timeout)

    async def _send_and_wait(
        self,
        text: str,
        predicate: Callable[[Message], bool],
        timeout: float,
    ) -> Message:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Message] = loop.create_future()

        async def handler(event: events.NewMessage.Event) -> None:
            if predicate(event.message) and not future.done():
                future.set_result(event.message)

        self.client.add_event_handler(handler, events.NewMessage(from_users=self._bot_entity))
        try:
            logger.info("-> %s", text)
            await self.client.send_message(self._bot_entity, text)
            message = await asyncio.wait_for(future, timeout)
            logger.info("<- %s", (message.raw_text or "").splitlines()[0])
            return message
        finally:
            self.client.remove_event_handler(handler)


async def ensure_authorized(client: TelegramClient, config: TestConfig) -> None:
    if await client.is_user_authorized():
        return
    logger.info("Authorising Telegram client for %s", config.phone_number)
    await client.send_code_request(config.phone_number)
    code = input("Enter the login code Telegram sent to your user: ")
    try:
        await client.sign_in(config.phone_number, code)
    except SessionPasswordNeededError:
        password = os.environ.get("TELEGRAM_TEST_PASSWORD")
        if not password:
            password = input("Enter your Telegram 2FA password: ")
        await client.sign_in(password=password)
