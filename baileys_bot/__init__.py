# Baileys Bot - WhatsApp Keyword Bot with an HTTP Send API
# ========================================================
# A thin layer over a multi-device WhatsApp library:
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI HTTP API (send text, invoices, images)
# - Domain:         JIDs, keyword commands, message models (no I/O)
# - Infrastructure: WhatsApp session, media loading, configuration
#
# The protocol itself (pairing, encryption, multi-device sync) lives in the
# external library and is reached only through MessagingSocket.

__version__ = "1.0.0"
