"""Terminal dashboard model: state, key actions, dialogs, screen renderers and server poller."""