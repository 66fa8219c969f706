"""Clients for the notation parsing collaborator."""
