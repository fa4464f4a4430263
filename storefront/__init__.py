"""Client-side state for the AS Nuts storefront: catalog, cart, checkout and owner portal."""
