"""Node metrics, panel rendering, monitor state and the terminal dashboard."""