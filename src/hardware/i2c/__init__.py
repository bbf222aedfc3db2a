from .i2c_engine import I2cEngine

__all__ = ["I2cEngine"]
