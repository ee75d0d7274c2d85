from ovpn_radius.cli import main

raise SystemExit(main())
