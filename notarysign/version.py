__version__ = '0.4.0'
__version_info__ = (0, 4, 0)
