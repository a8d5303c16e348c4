"""SIRANA - post-disaster health surveillance backend."""
