"""Core destination-writing logic: repositories, diffing, messages, and the writer."""
