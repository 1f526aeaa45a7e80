#!/usr/bin/env python3
"""
poiguide - Spoken nearby points of interest for pedestrians

Usage:
    python -m poiguide [options]

Options:
    --lat LAT         Fixed latitude (for testing without GPS)
    --lon LON         Fixed longitude (for testing without GPS)
    --playback FILE   Playback GPS trace from JSON file
    --speed FACTOR    Playback speed multiplier (default: 1.0)
    --radius METERS   Announce POIs within this distance (default: 500)
    --interval SECS   Seconds between announcements (default: 30)
    --once            Search and announce once, then exit (requires --lat/--lon)
    --pin NAME|RANK   Track distance to this POI once it is announced
    --live            Serve the live distance display over WebSocket
    --ws-port PORT    WebSocket port for --live (default: 8765)
    --log FILE        Log file path (default: poiguide_TIMESTAMP.log)
    --no-speech       Print announcements instead of speaking them
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

from .app import Guide
from .gps import FixedGPS, GPSPlayback, WebSocketGPS
from .models import Location


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="poiguide - Spoken nearby points of interest for pedestrians"
    )
    parser.add_argument("--lat", type=float, metavar="LAT",
                        help="Fixed latitude (for testing without GPS)")
    parser.add_argument("--lon", type=float, metavar="LON",
                        help="Fixed longitude (for testing without GPS)")
    parser.add_argument("--playback", metavar="FILE",
                        help="Playback GPS trace from JSON file")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Playback speed multiplier (default: 1.0)")
    parser.add_argument("--radius", type=float, metavar="METERS",
                        help="Announce POIs within this distance (default: 500)")
    parser.add_argument("--interval", type=float, metavar="SECS",
                        help="Seconds between announcements (default: 30)")
    parser.add_argument("--once", action="store_true",
                        help="Search and announce once, then exit (requires --lat and --lon)")
    parser.add_argument("--pin", metavar="NAME|RANK",
                        help="Track distance to this POI once it is announced")
    parser.add_argument("--live", action="store_true",
                        help="Serve the live distance display over WebSocket")
    parser.add_argument("--ws-port", type=int, metavar="PORT",
                        help="WebSocket port for --live (default: 8765)")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path (default: poiguide_TIMESTAMP.log)")
    parser.add_argument("--no-speech", action="store_true",
                        help="Print announcements instead of speaking them")
    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    # Validate lat/lon - must provide both or neither
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be used together")

    if args.once and args.lat is None:
        parser.error("--once requires --lat and --lon")

    if args.playback and args.lat is not None:
        parser.error("--playback cannot be combined with --lat/--lon")

    # Determine log path
    log_path = args.log
    if not log_path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"poiguide_{timestamp}.log"

    guide = Guide(
        log_path=log_path,
        radius=args.radius,
        interval=args.interval,
        speech=not args.no_speech,
        live_display=args.live,
        ws_port=args.ws_port,
        pin=args.pin,
    )

    if args.once:
        async def once():
            await guide.run_once(Location(lat=args.lat, lon=args.lon))
            await guide.wait_for_speech()
            guide.logger.close()

        asyncio.run(once())
        return

    # Set up GPS source
    if args.playback:
        if not Path(args.playback).exists():
            print(f"Playback file not found: {args.playback}")
            sys.exit(1)
        guide.set_gps_source(GPSPlayback(args.playback, args.speed))
    elif args.lat is not None:
        guide.set_gps_source(FixedGPS(args.lat, args.lon))
    elif args.live:
        # No GPS: positions come from live display clients
        guide.set_gps_source(WebSocketGPS(guide.live_server))

    try:
        asyncio.run(guide.run())
    except KeyboardInterrupt:
        print("\nStopped")


if __name__ == "__main__":
    main()
