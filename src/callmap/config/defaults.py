"""Default configuration values for callmap."""

# Layout geometry (pixels, world coordinates)
LAYOUT_ORIGIN_X = 50  # Left margin of the root column
LAYOUT_ORIGIN_Y = 100  # Top of the first root's slot
ROW_HEIGHT = 60  # Slot height of a collapsed node
NODE_HEIGHT = 40  # Drawn box height, centered on the node's y
MIN_NODE_WIDTH = 200
BASE_NODE_WIDTH = 200
CHAR_WIDTH = 8  # Added width per label character
COLUMN_GUTTER = 60  # Gap between a parent's right edge and its children

# Viewport
DEFAULT_PAN = (0.0, 0.0)
DEFAULT_ZOOM = 1.0
ZOOM_MIN = 0.3
ZOOM_MAX = 3.0
WHEEL_ZOOM_IN = 1.1
WHEEL_ZOOM_OUT = 0.9
BUTTON_ZOOM_IN = 1.2
BUTTON_ZOOM_OUT = 0.8

# Data sources
LOCAL_PAGINATION_THRESHOLD = 10  # Roots above which an upload is paged locally
DEFAULT_PAGE_SIZE = 5
PAGE_SIZE_CHOICES = [5, 10, 15, 20, 50]
SEARCH_DEBOUNCE_SECONDS = 1.5
REQUEST_TIMEOUT_SECONDS = 30.0

# Dataset server
SERVER_DEFAULT_PAGE_SIZE = 10
SERVER_MAX_PAGE_SIZE = 200
SERVER_DEFAULT_PORT = 8080
SERVER_PORT_RANGE = 20

# Shown before anything is uploaded, and restored when leaving server mode
DEFAULT_DATASET_LABEL = "EmployeeApp (Default)"
DEFAULT_DATASET: list[dict] = [
    {
        "name": "main.main",
        "line": 9,
        "filePath": "EmployeeApp\\main.go",
        "called": [
            {
                "name": "config.Load",
                "line": 9,
                "filePath": "EmployeeApp\\internal\\config\\config.go",
            },
            {
                "name": "routes.SetupRouter",
                "line": 10,
                "filePath": "EmployeeApp\\internal\\routes\\routes.go",
            },
        ],
    },
    {
        "name": "routes.SetupRouter",
        "line": 10,
        "filePath": "EmployeeApp\\internal\\routes\\routes.go",
        "called": [
            {
                "name": "middleware.CORS",
                "line": 5,
                "filePath": "EmployeeApp\\internal\\middleware\\cors.go",
            },
            {
                "name": "middleware.Logger",
                "line": 10,
                "filePath": "EmployeeApp\\internal\\middleware\\logger.go",
            },
            {
                "name": "handlers.NewEmployeeHandler",
                "line": 12,
                "filePath": "EmployeeApp\\internal\\handlers\\employee.go",
            },
        ],
    },
]

CONFIG_FILENAME = "callmap.yaml"
