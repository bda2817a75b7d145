"""MarkTree Engine — errors, configuration, logging, ownership checks."""
