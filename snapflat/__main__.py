from snapflat.main import main

main()
