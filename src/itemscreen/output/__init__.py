"""Output layer — console presenter/navigator and Rich/JSON rendering."""
