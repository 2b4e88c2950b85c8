"""Atomic (cross-chain) transactions carried in C-chain blocks."""
