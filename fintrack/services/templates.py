"""Outgoing WhatsApp message bodies with ``{placeholder}`` variables."""

from __future__ import annotations

from typing import Any

APP_NAME = "FinTrack AI"

OTP_TEMPLATE = "\n".join(
    [
        "*{appName}*",
        "",
        "Kode OTP Anda: *{otp}*",
        "",
        "Kode ini berlaku selama {expiry} menit.",
        "Jangan bagikan kode ini kepada siapapun.",
        "",
        "_Jika Anda tidak meminta kode ini, abaikan pesan ini._",
    ]
)

TRANSACTION_ADDED_TEMPLATE = "\n".join(
    [
        "📝 *Transaksi Baru Tercatat*",
        "",
        "Tipe: {type}",
        "Jumlah: {amount}",
        "Deskripsi: {description}",
        "Kategori: {category}",
        "Tanggal: {date}",
    ]
)

DAILY_SUMMARY_TEMPLATE = "\n".join(
    [
        "📊 *Ringkasan Harian - {date}*",
        "",
        "💰 Pemasukan: {totalIncome}",
        "💸 Pengeluaran: {totalExpense}",
        "📈 Saldo: {balance}",
        "📋 Total transaksi: {transactionCount}",
    ]
)

BUDGET_WARNING_TEMPLATE = "\n".join(
    [
        "⚠️ *Peringatan Budget*",
        "",
        "Pengeluaran bulan ini sudah mencapai *{percentage}%* dari budget.",
        "Terpakai: {spent} dari {budget}",
        "Sisa: {remaining}",
    ]
)


def render_template(template: str, **values: Any) -> str:
    """Replace each ``{key}`` with its value; unknown placeholders stay as-is."""
    result = template
    for key, value in values.items():
        result = result.replace(f"{{{key}}}", str(value))
    return result
