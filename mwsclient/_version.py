""" version info for python-mws-client """
# major, minor, patch
version_info = 0, 3, 0

# Nice string for the version
__version__ = '.'.join(map(str, version_info))
