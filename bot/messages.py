# bot/messages.py
# Centralized message templates with formatting.
# English is the default; Romanian (ASCII-only) is available via BOT_LANG=ro.
from __future__ import annotations

import logging
from typing import Dict

logger = logging.getLogger(__name__)

DEFAULT_LANG = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    "welcome": {
        "en": "Welcome to Sample Bot",
        "ro": "Bine ai venit la Sample Bot",
    },

    "ask_handle_name": {
        "en": "Please tell me your handle name first.",
        "ro": "Te rog spune-mi mai intai numele tau de utilizator.",
    },
    "handle_name_retry": {
        "en": "The handle name must be at least 3 words long.",
        "ro": "Numele de utilizator trebuie sa aiba cel putin 3 caractere.",
    },

    "ask_age_permission": {
        "en": "{handle} May I ask your age?",
        "ro": "{handle} Pot sa te intreb ce varsta ai?",
    },
    "confirm_retry": {
        "en": "Answer yes or No.",
        "ro": "Raspunde da sau nu.",
    },
    "ask_age": {
        "en": "What is your age?",
        "ro": "Ce varsta ai?",
    },
    "age_retry": {
        "en": "Enter the age in numbers.",
        "ro": "Introdu varsta in cifre.",
    },
    "age_private": {
        "en": "Age is private, isn't it?",
        "ro": "Varsta e privata, nu-i asa?",
    },
    "age_stated": {
        "en": "I'm {age} year old.",
        "ro": "Am {age} ani.",
    },
    "ask_final_confirm": {
        "en": "Is this the registration information you want?",
        "ro": "Acestea sunt datele pe care vrei sa le inregistrezi?",
    },

    "summary_age": {
        "en": "{handle} , {age} year old.",
        "ro": "{handle} , {age} ani.",
    },
    "summary_private": {
        "en": "{handle} Your age is private.",
        "ro": "{handle} Varsta ta este privata.",
    },
    "thanks": {
        "en": "Thank you for your input.",
        "ro": "Multumesc pentru raspunsuri.",
    },
    "visit_again": {
        "en": "I will visit you again.",
        "ro": "Revin mai tarziu.",
    },
}

# Normalize various language inputs to a standard code. Default to DEFAULT_LANG if unrecognized.
def normalize_lang(x: str) -> str:
    x = (x or "").strip().lower()
    if x in ("ro", "romana", "romanian"):
        return "ro"
    if x in ("en", "english"):
        return "en"
    return DEFAULT_LANG

# Translate a message key to the given language, applying formatting if needed.
def translate_msg(lang: str, key: str, **kwargs) -> str:
    table = MESSAGES[key]
    template = table.get(normalize_lang(lang)) or table[DEFAULT_LANG]
    try:
        return template.format(**kwargs)
    except KeyError as e:
        logger.warning("[MSG] template %s missing placeholder %s", key, e)
        return template
