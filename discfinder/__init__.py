"""Lost-and-found disc tracking service: legacy import and identity reconciliation."""
