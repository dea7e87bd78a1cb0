"""numpy reference integrator for the double pendulum."""
