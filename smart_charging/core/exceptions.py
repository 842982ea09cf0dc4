from typing import Optional


class SmartChargingError(Exception):
    """Erreur fatale d'un cycle de smart charging (aucun résultat partiel)"""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"[{self.source}] {self.message}"
        return self.message


class ConfigurationError(SmartChargingError):
    """URL ou identifiants de l'optimiseur manquants"""


class ValidationError(SmartChargingError):
    """Topologie ou session incohérente"""


class NotFoundError(SmartChargingError):
    """Entité référencée introuvable"""


class UpstreamError(SmartChargingError):
    """Échec de l'appel à l'optimiseur"""
