"""Point-to-point message delivery between anonymous sessions over Server-Sent Events."""
