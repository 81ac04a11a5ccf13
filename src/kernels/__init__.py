"""
Kernel layer.

`src/kernels/python/` contains the pure integer kernels (price codec, trade
pricing) that the stateful layers build on.
"""
