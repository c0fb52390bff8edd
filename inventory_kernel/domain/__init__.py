"""Pure domain logic: clock, partial-update validation, stock effect rules."""
