"""Collision term of a relativistic hadronic transport simulation."""
