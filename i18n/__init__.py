from .translator import Translator, AVAILABLE_LANGUAGES, DEFAULT_LANGUAGE

__all__ = ["Translator", "AVAILABLE_LANGUAGES", "DEFAULT_LANGUAGE"]
