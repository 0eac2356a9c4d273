from __future__ import annotations

import asyncio
import logging
import random
import sys
from pathlib import Path

CURRENT_DIR = Path(__file__).resolve().parents[2]
if str(CURRENT_DIR) not in sys.path:
    sys.path.insert(0, str(CURRENT_DIR))

from integration_tests.telegram_bot.common import (
    TelegramBotInteractor,
    TestConfig,
    ensure_authorized,
)

logger = logging.getLogger(__name__)


class ChatFlowsTester:
    def __init__(self, interactor: TelegramBotInteractor, link_code: str | None) -> None:
        self.interactor = interactor
        self.link_code = link_code

    async def run(self) -> None:
        await self.interactor.send_and_expect("/start", "selamat datang")
        await self.interactor.send_and_expect("/help", "panduan")
        await self.interactor.send_and_expect("/link", "/link kode")

        if self.link_code:
            await self.interactor.send_and_expect(
                f"/link {self.link_code}",
                ["akun berhasil terhubung", "sudah terhubung"],
            )
        else:
            logger.info("FINTRACK_TEST_LINK_CODE not set; assuming this chat is already linked.")

        await self.interactor.send_and_expect("/saldo", ["saldo dompet", "belum ada dompet"])

        # no digits or keyword letters, so the memo survives parsing intact
        stamp = "".join(random.choices("bcdhjlnpqrvwyz", k=6)) + "x"
        await self.interactor.send_and_expect(f"Makan tes{stamp} 50rb dari Cash", "pengeluaran tercatat")
        await self.interactor.send_and_expect("Gaji 5jt ke Bank", "pemasukan tercatat")
        await self.interactor.send_and_expect("Transfer 100rb dari Bank ke Cash", "transfer tercatat")
        await self.interactor.send_and_expect("halo bot", "jumlah tidak ditemukan")

        history = await self.interactor.send_and_expect("/riwayat", "transaksi terakhir")
        if f"tes{stamp}" not in (history.raw_text or ""):
            raise RuntimeError("Recorded expense is missing from /riwayat output.")

        logger.info("Chat flow test completed successfully")


async def main_async() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    config = TestConfig.from_env()
    client = config.client()
    await client.connect()
    try:
        await ensure_authorized(client, config)
        interactor = TelegramBotInteractor(client, config.bot_username)
        await interactor.initialise()
        await ChatFlowsTester(interactor, config.link_code).run()
    finally:
        await client.disconnect()


def main() -> None:
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
