from .media_loader import MediaLoader, LoadedMedia, decode_data_url

__all__ = ["MediaLoader", "LoadedMedia", "decode_data_url"]
