"""Language code to Text-to-Speech voice locale mapping."""

DEFAULT_LOCALE_PATTERN = "{lang}-US"

# Languages whose provider-side locale differs from "{lang}-US"
VOICE_LOCALE_OVERRIDES = {
    "zh": "cmn-CN",
    "hi": "hi-IN",
    "ta": "ta-IN",
    "kn": "kn-IN",
    "te": "te-IN",
    "ml": "ml-IN",
    "bn": "bn-IN",
    "mr": "mr-IN",
    "gu": "gu-IN",
    "ja": "ja-JP",
    "ko": "ko-KR",
    "fr": "fr-FR",
    "de": "de-DE",
    "es": "es-ES",
    "it": "it-IT",
    "pt": "pt-BR",
    "ru": "ru-RU",
    "ar": "ar-XA",
}


# Voice language prefix when a region is given explicitly ("zh-TW" -> "cmn-TW")
VOICE_LANGUAGE_ALIASES = {
    "zh": "cmn",
}


def voice_locale_for(language: str) -> str:
    """
    Return the voice locale for a target language code.

    Bare codes use the override table, then the default pattern. Codes that
    already carry a region keep it, uppercased.

    Examples:
        >>> voice_locale_for("zh")
        'cmn-CN'
        >>> voice_locale_for("en")
        'en-US'
        >>> voice_locale_for("pt-br")
        'pt-BR'
    """
    lang, _, region = (language or "").strip().partition("-")
    lang = lang.lower()
    if region:
        return f"{VOICE_LANGUAGE_ALIASES.get(lang, lang)}-{region.upper()}"
    if lang in VOICE_LOCALE_OVERRIDES:
        return VOICE_LOCALE_OVERRIDES[lang]
    return DEFAULT_LOCALE_PATTERN.format(lang=lang)
