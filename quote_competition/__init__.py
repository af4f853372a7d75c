"""Weekly quote competition service."""
