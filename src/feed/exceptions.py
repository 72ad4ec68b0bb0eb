class RateLimitError(Exception):
    """Sollevata quando il feed risponde 429 anche dopo tutti i tentativi di retry."""


class TransientFeedError(Exception):
    """Sollevata quando errori transitori (5xx / timeout / connessione) persistono oltre i tentativi massimi."""
