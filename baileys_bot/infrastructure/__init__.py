# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - whatsapp/: connection lifecycle, event relay and keyword replies (pyaileys)
# - media/: URL, data URL and file loading for outgoing media
# - config/: Environment and settings management
#
# This layer can be replaced entirely without affecting the domain layer.
