"""Feed proxy and viewer for RSS 2.0 and Atom documents."""
