"""Work request tracker: request lifecycle, time-cost ledger and reports."""
