# handlers/help_cmd.py
from pyrogram import Client, filters
from pyrogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message

from utils.check_admin import is_privileged
from utils.settings import Settings

MEMBER_COMMANDS = (
    "🙋 <b>Commandes membres</b>\n"
    "/quota_add @membre type quantité — ajouter des quotas\n"
    "/quota_remove @membre type quantité — retirer des quotas\n"
    "/quota_view [@membre] [all] — progression vs objectifs\n"
    "/quota_leaderboard — classement des quotas\n"
    "/objectif_view — objectifs de la semaine\n"
    "/vente_add montant [@membre] — enregistrer une vente\n"
    "/vente_my — tes ventes de la semaine\n"
    "/vente_leaderboard — classement des ventes\n"
    "/semaine — début de semaine et prochaine remise à zéro\n"
)

ADMIN_COMMANDS = (
    "⚙️ <b>Commandes admin</b>\n"
    "/objectif_set type quantité — objectif hebdo d'un produit (0 = aucun)\n"
    "/vente_view @membre — ventes d'un membre\n"
    "/vente_remove @membre montant — corriger des ventes\n"
    "/vente_objectif_set montant — objectif de ventes de l'équipe\n"
)


def back_markup():
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton("⬅️ Retour", callback_data="quota_help:main")]]
    )


def main_markup():
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("🙋 Membres", callback_data="quota_help:members")],
        [InlineKeyboardButton("⚙️ Admins", callback_data="quota_help:admins")],
    ])


HELP_TEXT = (
    "❓ <b>Aide quotas &amp; ventes</b>\n\n"
    "Les compteurs sont remis à zéro chaque semaine, les objectifs sont conservés."
)


def register(app: Client, settings: Settings):
    admins = settings.privileged_ids()

    @app.on_message(filters.command(["quota_help", "help"]))
    async def help_cmd_handler(client: Client, message: Message):
        await message.reply_text(HELP_TEXT, reply_markup=main_markup())

    @app.on_callback_query(filters.regex(r"^quota_help:(.+)$"))
    async def help_menu_callback(client: Client, query: CallbackQuery):
        data = query.data.split(":", 1)[1]

        if data == "main":
            await query.message.edit_text(HELP_TEXT, reply_markup=main_markup())
        elif data == "members":
            await query.message.edit_text(MEMBER_COMMANDS, reply_markup=back_markup())
        elif data == "admins":
            if await is_privileged(client, query.message.chat, query.from_user, admins):
                await query.message.edit_text(ADMIN_COMMANDS, reply_markup=back_markup())
            else:
                await query.answer("Réservé aux admins.", show_alert=True)
                return
        await query.answer()
