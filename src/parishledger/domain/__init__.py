"""Domain layer for parishledger.

Services are imported from their own modules, e.g.
``parishledger.domain.envelope_batch``.
"""
