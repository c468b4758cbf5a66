"""Model history backend."""
