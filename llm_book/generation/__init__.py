from .driver import GenerationDriver, history_from_cells, split_chunks

__all__ = ["GenerationDriver", "history_from_cells", "split_chunks"]
