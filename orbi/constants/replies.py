"""Bot reply texts per locale. MarkdownV2 templates are pre-escaped."""

DEFAULT_LOCALE = "en"

REPLIES = {
    "en": {
        "answer_header": "Answer for {user}:\n\n{preview}",
        "answer_button": "📝 See full answer",
        "found_text": (
            "📝 *Answer found\\!*\n\n{preview}\n\n"
            " _Tap the button below to see the full answer_"
        ),
        "found_button": "🔍 Tap here to open the answer",
        "not_found": "Sorry, I couldn't find that answer. It may have expired.",
        "welcome": (
            "Hello, {name}! 👋\n\n"
            "I'm Orbi AI, your virtual assistant. Ask me anything!\n\n"
            "Available command:\n/newchat - Start a new conversation"
        ),
        "welcome_fallback_name": "there",
        "history_button": "📱 Open history",
        "new_chat": "✨ New chat started! Go ahead and ask.",
        "error": (
            "Sorry, something went wrong while processing your message. "
            "Please try again later."
        ),
        "new_chat_api": "New chat started",
    },
    "pt": {
        "answer_header": "Resposta para {user}:\n\n{preview}",
        "answer_button": "📝 Ver Resposta Completa",
        "found_text": (
            "📝 *Resposta encontrada\\!*\n\n{preview}\n\n"
            " _Toque no botão abaixo para ver a resposta completa_"
        ),
        "found_button": "🔍 Toque aqui para abrir a resposta",
        "not_found": "Desculpe, não encontrei essa resposta. Ela pode ter expirado.",
        "welcome": (
            "Olá, {name}! 👋\n\n"
            "Eu sou o Orbi AI, seu assistente virtual. "
            "Pode me fazer perguntas sobre qualquer assunto!\n\n"
            "Comando disponível:\n/newchat - Inicia uma nova conversa"
        ),
        "welcome_fallback_name": "usuário",
        "history_button": "📱 Abrir histórico",
        "new_chat": "✨ Novo chat iniciado! Pode começar a conversar.",
        "error": (
            "Desculpe, ocorreu um erro ao processar sua mensagem. "
            "Tente novamente mais tarde."
        ),
        "new_chat_api": "Novo chat iniciado",
    },
}


def get_replies(locale: str) -> dict:
    return REPLIES.get((locale or "").lower(), REPLIES[DEFAULT_LOCALE])
