"""MarkTree Bookmarks — tag and bookmark collaborators of the folder engine."""
