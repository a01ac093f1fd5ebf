"""
Media Converter - batch conversion of media files with a persistent
"already converted" cache so repeated runs over the same tree do no redundant work.
"""

__version__ = "1.0.0"
