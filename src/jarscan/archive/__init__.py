"""Archive access for jarscan."""

from .jar_reader import CLASS_SUFFIX, JarArchive, is_class_entry, open_archive

__all__ = ["CLASS_SUFFIX", "JarArchive", "is_class_entry", "open_archive"]
