from oncosaferx.state.store import Action, Store

__all__ = ["Action", "Store"]
