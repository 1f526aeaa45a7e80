"""Configuration settings for poiguide."""

CONFIG = {
    "gps_poll_interval": 3,  # seconds
    "announcement_interval": 30,  # seconds between discovery+announce cycles
    "search_radius": 500,  # meters - acceptance radius for announced POIs
    "max_results": 5,  # POIs per announcement
    "dedupe_distance": 10,  # meters - same name closer than this is one place
    "tracking_threshold": 10,  # meters of movement before a live distance push
    "search_timeout": 20,  # seconds - per-term search, slower terms count as failed
    "log_interval": 10,  # seconds between log entries
    # One search per term, in this order
    "category_terms": [
        "restaurant",
        "café",
        "pharmacie",
        "arrêt de bus",
        "boulangerie",
        "supermarché",
        "banque",
        "hôtel",
        "musée",
        "parc",
    ],
    # Speech
    "locale": "fr-FR",
    "espeak_voice": "fr",
    "espeak_speed": 150,  # words per minute
    # Overpass
    "overpass_url": "https://overpass-api.de/api/interpreter",
    "overpass_timeout": 25,  # seconds - server-side query timeout
    # Live display
    "ws_host": "localhost",
    "ws_port": 8765,
}
