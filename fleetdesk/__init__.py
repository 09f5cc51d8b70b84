"""FleetDesk - gestion de flotte / fleet management backend."""
