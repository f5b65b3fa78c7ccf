"""Engine — ledger merge, commit evaluation and failure recovery."""
