"""
Place ranking and roulette engine.

Responsibilities:
- Normalise permissive filter input (centre, radius, price, rating, tags).
- Fetch the nearby candidate pool from the configured place store.
- Annotate candidates with distance and a weekly availability flag.
- Score candidates with explicit weights and a reproducible breakdown.
- Rank the pool, or draw one candidate uniformly at random.
"""
