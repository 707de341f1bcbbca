import uvicorn


def main() -> None:
    """Run the geolocation relay service with uvicorn."""
    uvicorn.run(
        "geolocator.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
