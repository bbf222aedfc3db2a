from .pixel_encoder import PixelEncoder, expand_byte, encode_frame

__all__ = ["PixelEncoder", "expand_byte", "encode_frame"]
