"""Ontology Kernel — substances, potentialities and condition-gated actualization."""
