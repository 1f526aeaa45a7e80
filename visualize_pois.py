#!/usr/bin/env python3
"""
Show the POIs one discovery cycle would announce on an interactive map.

Usage:
    python visualize_pois.py lat lon [--radius METERS] [--output PATH]

Examples:
    python visualize_pois.py 48.8566 2.3522
    python visualize_pois.py 48.8566 2.3522 --radius 300 --output pois.html
"""

import argparse
import asyncio

import folium

from poiguide import CONFIG, Category, DiscoveryEngine, Location, OverpassSearchProvider
from poiguide.announcer import build_announcement

CATEGORY_COLORS = {
    Category.RESTAURANT: "red",
    Category.CAFE: "orange",
    Category.PHARMACY: "green",
    Category.BUS_STOP: "blue",
    Category.BAKERY: "beige",
    Category.SUPERMARKET: "purple",
    Category.BANK: "darkblue",
    Category.HOTEL: "cadetblue",
    Category.MUSEUM: "darkred",
    Category.PARK: "darkgreen",
}


def create_map(lat: float, lon: float, radius: float) -> folium.Map:
    """Run one discovery cycle and draw its results."""
    origin = Location(lat=lat, lon=lon)

    print(f"Searching POIs around ({lat}, {lon}), radius {radius:.0f}m...")
    engine = DiscoveryEngine(OverpassSearchProvider())
    pois = asyncio.run(engine.discover(origin, radius))
    print(f"Found {len(pois)} POIs")
    print(build_announcement(pois))

    m = folium.Map(location=[lat, lon], zoom_start=17, tiles="CartoDB positron")
    folium.TileLayer("OpenStreetMap", name="OpenStreetMap").add_to(m)

    # Acceptance radius
    folium.Circle(
        [lat, lon],
        radius=radius,
        color="#3b82f6",
        fill=True,
        fill_opacity=0.05,
        popup=f"{radius:.0f}m",
    ).add_to(m)

    folium.Marker(
        [lat, lon],
        popup="You are here",
        icon=folium.Icon(color="black", icon="user"),
    ).add_to(m)

    for rank, poi in enumerate(pois, 1):
        loc = poi.candidate.location
        popup_text = f"""
            <b>{rank}. {poi.name}</b><br>
            {poi.category.label}<br>
            Distance: {poi.distance_m:.0f}m<br>
            {poi.candidate.phone or ''}
        """
        folium.Marker(
            [loc.lat, loc.lon],
            popup=folium.Popup(popup_text, max_width=200),
            tooltip=f"{rank}. {poi.name}",
            icon=folium.Icon(color=CATEGORY_COLORS.get(poi.category, "gray"), icon="info-sign"),
        ).add_to(m)
        folium.PolyLine(
            [[lat, lon], [loc.lat, loc.lon]],
            weight=2,
            color="#64748b",
            opacity=0.6,
        ).add_to(m)

    folium.LayerControl().add_to(m)
    return m


def main():
    parser = argparse.ArgumentParser(description="Map the POIs that would be announced")
    parser.add_argument("lat", type=float, help="Latitude")
    parser.add_argument("lon", type=float, help="Longitude")
    parser.add_argument("--radius", type=float, default=CONFIG["search_radius"],
                        help="Acceptance radius in meters (default: 500)")
    parser.add_argument("--output", "-o", default="pois.html",
                        help="Output HTML file (default: pois.html)")
    args = parser.parse_args()

    m = create_map(args.lat, args.lon, args.radius)
    m.save(args.output)
    print(f"\nMap saved to: {args.output}")


if __name__ == "__main__":
    main()
