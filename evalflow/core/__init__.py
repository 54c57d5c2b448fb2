"""Core evaluation components: data, engine stages and the evaluation workflow."""
