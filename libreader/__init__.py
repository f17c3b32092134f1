"""libreader: personal EPUB/PDF library backend."""
