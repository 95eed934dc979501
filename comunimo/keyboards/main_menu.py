"""
Main menu keyboards.
"""
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from comunimo.keyboards.callbacks import MainMenuCb


def main_menu() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="🏃 Iscrivi atleti",          callback_data=MainMenuCb(action="register").pack()),
    )
    builder.row(
        InlineKeyboardButton(text="📋 Iscrizioni campionato",   callback_data=MainMenuCb(action="registrations").pack()),
    )
    return builder.as_markup()


def back_to_main() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="🔙 Menu principale", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()
