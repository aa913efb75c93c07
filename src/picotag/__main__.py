from picotag.cli import main

raise SystemExit(main())
