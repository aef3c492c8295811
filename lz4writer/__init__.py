# Author: Futhark1393
# Description: lz4writer: streaming LZ4 frame writer with retroactive content-size header.

__version__ = "1.0.0"
